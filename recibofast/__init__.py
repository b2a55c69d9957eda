"""RecibôFast offline-first receipt sync engine."""
