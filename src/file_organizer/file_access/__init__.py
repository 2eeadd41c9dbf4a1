"""
File system access and file/folder actions.
"""
