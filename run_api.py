import asyncio
import os

from tennis_importer.api import create_app
from tennis_importer.config import Settings
from tennis_importer.storage import init_db


def main():
    settings = Settings.from_env()
    asyncio.run(init_db(settings.db_path))
    app = create_app(settings)
    app.run(host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "5000")))

if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        pass
