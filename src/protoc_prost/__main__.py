import sys

from protoc_prost.main import main

sys.exit(main())
