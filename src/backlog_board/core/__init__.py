"""
Core board engine: config, task index, pagination, milestones, mutations and export.
"""
