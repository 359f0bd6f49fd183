"""Services: validated operations shared by the HTTP layer and the assistant."""
from longway.services.itinerary import ItineraryService
from longway.services.settings import SettingsService
from longway.services.transfer import ImportResult, export_all, import_data

__all__ = ["ItineraryService", "SettingsService", "ImportResult", "export_all", "import_data"]
