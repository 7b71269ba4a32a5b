import logging
from muxserver.core.trace import trace_id_var

LOG_FORMAT = "%(asctime)s [%(levelname)s] [trace_id=%(trace_id)s] %(message)s"

class TraceLogFilter(logging.Filter):
    def filter(self, record):
        record.trace_id = trace_id_var.get() or "-"
        return True

def configure_logging(level: str | int = logging.INFO):
    logging.basicConfig(level=level, format=LOG_FORMAT)
    root = logging.getLogger()
    # handler-level so records from named loggers get the field too
    for handler in root.handlers:
        if not any(isinstance(f, TraceLogFilter) for f in handler.filters):
            handler.addFilter(TraceLogFilter())
