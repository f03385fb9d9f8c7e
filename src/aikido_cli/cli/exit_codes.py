"""Exit codes for aikido-cli.

- 0: Scan completed and the gate passed
- 1: Start/poll failure, missing api key or invalid options
- 10: Scan completed but the gate did not pass
"""

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_GATE_FAILED = 10
