"""Selection workflow: drawn shapes, filter composition and export.

- shapes: Shape lifecycle registry with overlay intents
- filters: Attribute + shape filter composition over live datasets
- export: Export snapshot and atomic removal of exported parcels
"""
