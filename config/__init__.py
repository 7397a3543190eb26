# config package — authoritative source for client connection configuration.
#
# Sub-modules:
#   client_config.py  — connection environment variables, logging dictConfig
#
# Library constants (option defaults, endpoint names, cache TTLs) live in
# src/odoo_client/config.py.
