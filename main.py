from __future__ import annotations

from gemification import create_app
from gemification.config import load_settings

app = create_app()

if __name__ == "__main__":
    settings = load_settings()
    app.run(host="0.0.0.0", port=settings.port)
