"""HTTP surface for Longway."""
