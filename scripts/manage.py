"""Operations CLI entry point — see consorcio_market.manage."""

import sys

from consorcio_market.manage import main

if __name__ == "__main__":
    sys.exit(main())
