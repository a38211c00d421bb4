import uvicorn

from .settings import get_settings


def main() -> None:
    """Serve the API with uvicorn on the configured HOST/PORT."""
    settings = get_settings()
    uvicorn.run("todos_api.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
