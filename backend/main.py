import uvicorn
from orderflow.core.config import settings


def main():
    """Start the order fulfillment API server."""
    uvicorn.run("orderflow.main:app", host=settings.HOST, port=settings.PORT, reload=True)


if __name__ == "__main__":
    main()
