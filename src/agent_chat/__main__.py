"""Run the service: ``python -m agent_chat``."""
import uvicorn

from agent_chat.config.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "agent_chat.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=None,
    )


if __name__ == "__main__":
    main()
