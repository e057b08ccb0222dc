"""Entry point: ``python -m myclinic_backup``."""

from myclinic_backup.cli import app

if __name__ == "__main__":
    app()
