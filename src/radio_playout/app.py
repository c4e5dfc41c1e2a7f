"""Single application entry point that runs the engine, ad scheduler and web interface."""

import logging
import sys
import threading

from .config import config
from .models import init_db
from .broadcast import BroadcastSink
from .catalog import CatalogCache
from .engine import RadioEngine
from .scheduler import AdScheduler
from .web import app, socketio, set_engine, assets

logger = logging.getLogger(__name__)

def setup_logging():
    """Setup logging configuration."""
    config.ensure_directories()

    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(config.LOG_FILE),
            logging.StreamHandler(sys.stdout)
        ]
    )

class RadioApp:
    """Main radio application: playout engine, ad scheduler and web server."""

    def __init__(self):
        self.engine = None
        self.ad_scheduler = None
        self.scheduler_thread = None

    def setup(self):
        """Setup the application."""
        setup_logging()
        logger.info("Starting radio playout controller")

        init_db()

        sink = BroadcastSink(socketio)
        sink.start()
        self.engine = RadioEngine(catalog=CatalogCache(), sink=sink)

        # Share engine with the web interface
        set_engine(self.engine)

        self.engine.initialize()

        self.ad_scheduler = AdScheduler(self.engine)
        self.ad_scheduler.setup_schedule()

    def start_scheduler_thread(self):
        """Start the ad scheduler in a background thread."""
        self.scheduler_thread = threading.Thread(target=self.ad_scheduler.run, daemon=True)
        self.scheduler_thread.start()

    def check_asset_store(self):
        """Make sure the media release exists, without blocking startup."""
        def worker():
            try:
                assets.ensure_release()
            except Exception as e:
                logger.error(f"⚠️ GitHub error: {e}")

        threading.Thread(target=worker, daemon=True).start()

    def run(self):
        """Run the complete radio application."""
        try:
            self.setup()
            self.start_scheduler_thread()
            self.check_asset_store()

            logger.info(f"🚀 Radio server starting on {config.HOST}:{config.PORT}")
            socketio.run(
                app,
                host=config.HOST,
                port=config.PORT,
                debug=config.DEBUG,
                use_reloader=False,
                allow_unsafe_werkzeug=True
            )

        except KeyboardInterrupt:
            logger.info("Radio stopped by user")
        except Exception as e:
            logger.error(f"Radio application error: {e}")
            sys.exit(1)
        finally:
            self.cleanup()

    def cleanup(self):
        """Cleanup when shutting down."""
        logger.info("🛑 Stopping the radio...")
        if self.ad_scheduler:
            self.ad_scheduler.stop()
        if self.engine:
            self.engine.stop()
            self.engine.sink.stop()
        logger.info("✅ Radio stopped")

def main():
    """Main entry point."""
    radio = RadioApp()
    radio.run()

if __name__ == "__main__":
    main()
