import uvicorn

from receiptly.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "receiptly.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
