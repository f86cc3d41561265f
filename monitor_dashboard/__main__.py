"""
使用方式:
    python -m monitor_dashboard
    python -m monitor_dashboard --once
"""

from monitor_dashboard.main import cli

if __name__ == "__main__":
    cli()
