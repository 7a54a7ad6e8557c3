import os

from amrex_reader.utilities.configure import ARConfig, configuration_callbacks

arcfg_defaults = {}

arcfg_defaults["amrex_reader"] = dict(
    log_level=20,
    colored_logs=False,
    suppress_stream_logging=False,
    stdout_stream_logging=False,
    # default bound on diagnostic messages returned with a status
    message_length=256,
    # a FAB header line longer than this is treated as corrupt
    fab_header_max_bytes=4096,
)


_global_config_file = ARConfig.get_global_config_file()
_local_config_file = ARConfig.get_local_config_file()

arcfg = ARConfig()
arcfg.update(arcfg_defaults, metadata={"source": "defaults"})

# The local config file shadows the global one entirely
if os.path.exists(_local_config_file):
    arcfg.read(_local_config_file)
elif os.path.exists(_global_config_file):
    arcfg.read(_global_config_file)


def _setup_postinit_configuration():
    """This is meant to be run last in amrex_reader.__init__"""
    for callback in configuration_callbacks:
        callback(arcfg)
