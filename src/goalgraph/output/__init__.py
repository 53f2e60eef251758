"""Human (Rich) and machine (JSON) rendering of service results."""
