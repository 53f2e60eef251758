"""goalgraph — goal ownership and visibility on a transactional property graph."""

__version__ = "0.1.0"
