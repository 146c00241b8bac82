import threading
import time


class SharedState:
    """
    Singleton class to share state between the detection scheduler
    and the FastAPI preview server.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance.reset()
        return cls._instance

    def reset(self):
        self.frame = None
        self.frame_lock = threading.Lock()
        self.scheduler = None
        self.target_classes = []
        self.stream_fps = 10
        self.system_stats = {
            "start_time": 0,
            "last_cycle_ts": None,
            "cycle_count": 0,
            "cycle_fps": 0.0,
            "last_cycle_ms": 0.0,
            "has_detections": False,
            "detection_count": 0,
        }

    def set_frame(self, frame):
        """Update the latest overlay frame."""
        with self.frame_lock:
            if frame is not None:
                self.frame = frame.copy()

    def get_frame(self):
        """Get the latest overlay frame."""
        with self.frame_lock:
            if self.frame is None:
                return None
            return self.frame.copy()

    def set_scheduler(self, scheduler, target_classes=None):
        self.scheduler = scheduler
        self.target_classes = list(target_classes or [])

    def get_scheduler_state(self):
        if self.scheduler is None:
            return "idle"
        return self.scheduler.state.value

    def record_cycle(self, result, frame=None):
        """Fold one pipeline CycleResult into the preview stats."""
        now = time.time()
        last_ts = self.system_stats.get("last_cycle_ts")
        if last_ts:
            dt = now - last_ts
            if dt > 0:
                # Exponential smoothing keeps the rate readable
                prev = self.system_stats.get("cycle_fps") or (1.0 / dt)
                self.system_stats["cycle_fps"] = 0.8 * prev + 0.2 * (1.0 / dt)
        self.system_stats["last_cycle_ts"] = now
        self.system_stats["cycle_count"] = self.system_stats.get("cycle_count", 0) + 1
        self.system_stats["last_cycle_ms"] = result.latency_ms
        if result.rendered:
            self.system_stats["has_detections"] = result.has_detections
            self.system_stats["detection_count"] = len(result.detections)
            if frame is not None:
                self.set_frame(frame)

    def update_system_stats(self, stats):
        self.system_stats.update(stats)

    def get_system_stats_copy(self):
        """Return a shallow copy of current system stats."""
        return dict(self.system_stats)


# Global instance
state = SharedState()
