import sys

from voiceserver.main import main

sys.exit(main())
