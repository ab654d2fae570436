from __future__ import annotations

from browser_mcp.cli import app

if __name__ == '__main__':
    app(prog_name='browser-mcp')
