"""Example: using the service layer directly (without Flask).

Controllers are a thin layer; the monitor rules live in MonitorService.
"""

import importlib

from config import get_settings_module

from src.inventory_system.inventory_system.container import build_container


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)
    try:
        service = container.monitor_service
        print(f"Monitors: {service.count_active_monitors()}/{service.max_monitors}")
        for m in service.get_active_monitors():
            print(f"- {m.full_name} until {m.end_date}")
    finally:
        container.close()


if __name__ == "__main__":
    main()
