"""ETF Tracker - portfolio analytics for personal ETF investments."""

__version__ = "1.0.0"
