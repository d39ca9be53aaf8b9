# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Allow ``python -m agent_transcript``."""

import sys

from agent_transcript.cli import main


sys.exit(main())
