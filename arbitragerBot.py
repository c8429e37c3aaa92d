#!/usr/bin/env python3
"""
Thin entrypoint that delegates to arbitrager.main.run().
Bootstrap, quote polling and swap execution live under arbitrager/.
"""

from arbitrager.main import run


if __name__ == "__main__":
    run()
