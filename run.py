#!/usr/bin/env python3
"""
S3 Multipart Copy

Run this script to copy a large S3 object in parallel byte-range parts.

Usage:
    python run.py src-bucket/big.bin dst-bucket/big.bin
    python run.py s3://src/big.bin s3://dst/big.bin --part-size 100000000
    python run.py src/big.bin dst/big.bin -s 2147483648   # Skip HeadObject
    python run.py src/big.bin dst/big.bin -c custom.json  # Custom config
    python run.py src/big.bin dst/big.bin -q              # Quiet mode
    python run.py src/big.bin dst/big.bin -j result.json  # Output JSON result
"""

import sys
from multipart_copy.cli import main

if __name__ == "__main__":
    sys.exit(main())
