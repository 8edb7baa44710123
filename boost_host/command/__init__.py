# boost_host/command/__init__.py
# Command handling: wire encoders (binary_commands) and the high-level dispatcher
#   from boost_host.command.binary_commands import encode_motor_timed_dual
#   from boost_host.command.dispatcher import CommandDispatcher
