from __future__ import annotations

from hospital.config import load_settings
from hospital.db import make_engine


def main() -> None:
    engine = make_engine(load_settings().database_url)
    print("ENGINE URL:", engine.url.render_as_string(hide_password=True))
    print("DB FILE   :", engine.url.database)


if __name__ == "__main__":
    main()
