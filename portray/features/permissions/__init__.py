"""
Permission feature module.

Grants are `section[:subsection]:levels` strings attached to roles; the
evaluator decides read/write/manage access from them.
"""
