from stableswap.workers.interval import IntervalWorker

__all__ = ["IntervalWorker"]
