import uvicorn

from .config import settings


def main() -> None:
    uvicorn.run("originality_service.main:app", host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
