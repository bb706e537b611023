import threading
import time


class SharedState:
    """
    Singleton class to share the active detection session between the
    frame loop and the FastAPI diagnostics server.

    The web side only reads telemetry and queues requests on the session;
    the session applies them on the frame loop.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance.session = None
                    cls._instance.session_lock = threading.Lock()
                    cls._instance.start_time = time.time()
        return cls._instance

    def set_session(self, session):
        with self.session_lock:
            self.session = session

    def get_session(self):
        with self.session_lock:
            return self.session

    def uptime_seconds(self):
        return time.time() - self.start_time


# Global instance
state = SharedState()
