"""System-wide constants. All magic numbers and strings live here."""

from __future__ import annotations

# ── Currency Codes ───────────────────────────────────────────────
CURRENCY_BTC = "BTC"
CURRENCY_ETH = "ETH"

# ── Instruments ──────────────────────────────────────────────────
SYMBOL_BTC_PERPETUAL = "BTC-PERPETUAL"
SYMBOL_ETH_PERPETUAL = "ETH-PERPETUAL"

# Default instrument used when an account summary is requested by currency.
CURRENCY_SYMBOLS: dict[str, str] = {
    CURRENCY_BTC: SYMBOL_BTC_PERPETUAL,
    CURRENCY_ETH: SYMBOL_ETH_PERPETUAL,
}

# ── Contract Rules ───────────────────────────────────────────────
CONTRACT_SIZE = 10                  # USD per contract; amounts must be multiples
POSITION_SIZE_LIMIT = 100_000       # max |position size| in USD
MAX_LEVERAGE = 100                  # order notional <= balance * leverage * price

# ── Fee Schedule ─────────────────────────────────────────────────
DEFAULT_MAKER_FEE_RATE = -0.00025   # negative = rebate
DEFAULT_TAKER_FEE_RATE = 0.00075

# ── Account ──────────────────────────────────────────────────────
DEFAULT_INITIAL_BALANCE = 1.0       # base currency (e.g. 1 BTC)

# ── Order Book ───────────────────────────────────────────────────
SYNTHETIC_BOOK_DEPTH = 1            # one level per side from the top-of-book quote
