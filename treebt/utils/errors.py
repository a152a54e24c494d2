# treebt/utils/errors.py


class BacktestError(RuntimeError):
    """
    Base class for errors raised by treebt itself.
    """


class ConfigurationError(BacktestError):
    """
    Raised for an incomplete or invalid backtest setup
    (missing handler, empty symbol list, unknown algo type, missing data file).
    """
