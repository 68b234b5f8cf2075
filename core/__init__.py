"""
NetSweep Core — Public API

from core import ScanEngine, ScanConfig, expand_range, parse_ports
"""
from core.models        import (ProbeOutcome, HostRecord, ScanOptions, ScanConfig,
                                ScanSession, ScanValidationError)
from core.events        import (EventKind, LifecycleEvent, ProgressEvent, HostRecordEvent,
                                ValidationFailed, EventLog, event_to_dict)
from core.targets       import expand_range, detect_local_range
from core.port_parser   import PortParser, parse_ports
from core.probe         import Prober, TcpConnectProber, SimulatedProber, make_prober
from core.os_detect     import OSDetector, PortHintOSDetector, SimulatedOSDetector
from core.timing        import ProgressMeter, pacing_delay_ms, speed_label, format_duration
from core.results       import ResultStore
from core.scanner_engine import ScanEngine, validate_config
from core.runner        import BackgroundScanner

__all__ = [
    "ScanEngine", "BackgroundScanner", "validate_config",
    "ProbeOutcome", "HostRecord", "ScanOptions", "ScanConfig", "ScanSession",
    "ScanValidationError",
    "EventKind", "LifecycleEvent", "ProgressEvent", "HostRecordEvent",
    "ValidationFailed", "EventLog", "event_to_dict",
    "expand_range", "detect_local_range", "PortParser", "parse_ports",
    "Prober", "TcpConnectProber", "SimulatedProber", "make_prober",
    "OSDetector", "PortHintOSDetector", "SimulatedOSDetector",
    "ProgressMeter", "pacing_delay_ms", "speed_label", "format_duration",
    "ResultStore",
]
