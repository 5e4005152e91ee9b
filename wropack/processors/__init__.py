__all__ = ["cssmin", "rewrite"]
