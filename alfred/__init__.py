"""
Alfred - a tool-using gala host agent
"""
