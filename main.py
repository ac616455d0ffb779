from dotenv import load_dotenv
from loguru import logger

load_dotenv()

from doctors_portal.api.server import run_server  # noqa: E402
from doctors_portal.config import get_settings  # noqa: E402
from doctors_portal.log import configure_logging  # noqa: E402


def main():
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info(f"Server running at http://{settings.host}:{settings.port}")
    run_server(host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
