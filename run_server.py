#!/usr/bin/env python3
"""Run the Longway web server."""
from longway.config import get_server_config


def main():
    import uvicorn

    cfg = get_server_config()

    print(f"""
    ╔═══════════════════════════════════════════════════════╗
    ║           Longway Server                              ║
    ╠═══════════════════════════════════════════════════════╣
    ║  URL: http://{cfg.host}:{cfg.port:<5}                            ║
    ║  API Docs: http://{cfg.host}:{cfg.port:<5}/docs                  ║
    ║  Hot Reload: {str(cfg.reload):<5}                              ║
    ╚═══════════════════════════════════════════════════════╝
    """)

    uvicorn.run(
        "server.app:app",
        host=cfg.host,
        port=cfg.port,
        reload=cfg.reload,
        log_level=cfg.log_level.lower(),
    )


if __name__ == "__main__":
    main()
