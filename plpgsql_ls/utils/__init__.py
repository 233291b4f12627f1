from plpgsql_ls.utils import logging, text

__all__ = ("logging", "text")
