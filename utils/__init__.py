"""NetSweep Utils"""
from utils.logger     import get_logger, set_level, log
from utils.validators import validate_port, parse_octets, clamp_speed
from utils.constants  import PortState, ScanState, StatusFilter, PORT_PRESETS
__all__ = ["get_logger", "set_level", "log", "validate_port", "parse_octets",
           "clamp_speed", "PortState", "ScanState", "StatusFilter", "PORT_PRESETS"]
