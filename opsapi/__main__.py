"""Entry point: python -m opsapi"""
import logging
import uvicorn
from scheduler.config import settings
from .app import create_app

def main():
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    uvicorn.run(create_app(), host=settings.HOST, port=settings.PORT)

if __name__ == "__main__":
    main()
