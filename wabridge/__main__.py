from __future__ import annotations
import uvicorn
from wabridge.config import Settings, load_settings
from wabridge.server.app import create_app

def serve(settings: Settings) -> None:
    """Run the relay in-process; queues live as long as this process does."""
    app = create_app(settings)
    # one worker only: queues are process-local
    uvicorn.run(app, host=settings.host, port=settings.port, workers=1, log_level=settings.log_level.lower())

def main():
    serve(load_settings())

if __name__ == "__main__":
    main()
