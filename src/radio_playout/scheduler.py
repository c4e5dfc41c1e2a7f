"""Minute tick that evaluates the ad schedule."""

import logging
import time

import schedule

from .engine import RadioEngine

logger = logging.getLogger(__name__)

class AdScheduler:
    """Runs `RadioEngine.check_scheduled_ads` at the top of every minute."""

    def __init__(self, engine: RadioEngine, poll_interval: float = 1.0):
        self.engine = engine
        self.poll_interval = poll_interval
        self.scheduler = schedule.Scheduler()
        self.running = False

    def setup_schedule(self):
        """Register the minute tick, replacing any previous jobs."""
        self.scheduler.clear()
        self.scheduler.every().minute.at(":00").do(self.tick)
        logger.info("⏰ Ad scheduler enabled")

    def tick(self):
        try:
            entry = self.engine.check_scheduled_ads()
            if entry:
                logger.info(f"Scheduled ad started: {entry.ad.title}")
        except Exception as e:
            logger.error(f"Error checking scheduled ads: {e}")

    def run(self):
        """Run the scheduler loop until `stop()` is called."""
        logger.info("Ad scheduler started")
        self.running = True

        while self.running:
            try:
                self.scheduler.run_pending()
                time.sleep(self.poll_interval)
            except KeyboardInterrupt:
                logger.info("Ad scheduler interrupted")
                break
            except Exception as e:
                logger.error(f"Scheduler error: {e}")
                time.sleep(self.poll_interval)

        logger.info("Ad scheduler stopped")

    def stop(self):
        self.running = False
