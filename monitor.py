import gc
import os
import threading
import time
from functools import wraps

import psutil

MEM_SAMPLE_INTERVAL = 0.01


class MemoryMonitor(threading.Thread):
    """Sample the RSS of this process on a daemon thread and keep the peak"""

    def __init__(self, interval=MEM_SAMPLE_INTERVAL):
        super().__init__(daemon=True)
        self.interval = interval
        self.peak = psutil.Process(os.getpid()).memory_info().rss
        self.running = True

    def run(self):
        proc = psutil.Process(os.getpid())
        while self.running:
            try:
                self.peak = max(self.peak, proc.memory_info().rss)
            except psutil.Error:
                break
            time.sleep(self.interval)

    def stop(self):
        self.running = False

    @property
    def peak_mb(self):
        return self.peak / (1024 * 1024)


def experiment(name):
    """Wrap func so a call returns its name, time, memory delta (MB) and result"""

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            gc.collect()
            base_mem = psutil.Process(os.getpid()).memory_info().rss
            monitor = MemoryMonitor()
            monitor.start()
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            finally:
                monitor.stop()
                monitor.join()
            return {
                "name": name,
                "time": time.time() - start_time,
                "memory": (monitor.peak - base_mem) / (1024**2),
                "result": result,
            }

        return wrapper

    return decorator
