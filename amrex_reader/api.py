"""
Module-level entry points working on one process-wide :class:`DatasetContext`,
for callers that cannot hold on to a context object (e.g. through a foreign
function interface).  Calls must be serialized by the caller.

"""
from amrex_reader.context import DatasetContext

_default_context = DatasetContext()


def get_default_context():
    return _default_context


def reset_default_context():
    """Forget the loaded dataset and the status codes."""
    global _default_context
    _default_context = DatasetContext()
    return _default_context


def configure_status_codes(no_error, severe, fatal):
    _default_context.configure_status_codes(no_error, severe, fatal)


def load_dataset(path, message_length=None):
    return _default_context.load_dataset(path, message_length=message_length)


def extract_subdomain(query_lo, query_hi, out, message_length=None):
    return _default_context.extract_subdomain(
        query_lo, query_hi, out, message_length=message_length
    )
