"""
PAT - property analysis toolkit for rental and flip deal evaluation.
"""
