"""
ZMU Test Suite Package.

Pytest-based unit tests, one module per area:
- test_validator / test_config: option schemas, validation, settings.
- test_persistence: settings file codec, load/save.
- test_sync: host/remote sync over the loopback transport.
- test_timers / test_events / test_logger: supporting utilities.
- test_definitions / test_inspect_script: definitions files and the CLI.
"""
