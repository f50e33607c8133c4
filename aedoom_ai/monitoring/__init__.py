"""
Monitoring components: performance tracking
"""
from aedoom_ai.monitoring.performance_monitor import PerformanceMonitor

__all__ = [
    'PerformanceMonitor',
]
