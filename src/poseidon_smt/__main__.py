import sys

from poseidon_smt.cli import main

sys.exit(main())
