"""Spatial components.

- predicates: Point-in-circle / point-in-polygon tests
- index: STRtree-backed range index over a dataset snapshot
- viewport: Zoom-adaptive viewport culling
"""
