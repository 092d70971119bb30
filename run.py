import asyncio

from tennis_importer.config import Settings
from tennis_importer.importer import TennisImporter
from tennis_importer.models import DateWindow
from tennis_importer.storage import init_db


async def main():
    settings = Settings.from_env()
    await init_db(settings.db_path)
    async with TennisImporter.from_settings(settings) as importer:
        result = await importer.import_matches(DateWindow.last_days(31), limit=50)
    print(result.to_dict())

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
