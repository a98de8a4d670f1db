"""
Structural route analysis.

Components:
- polyline: encoded polyline codec
- geo: haversine distance and implied speed
- segmenter: ~500 m segmentation, type classification, tags
- signals: structural risk signal extraction
- analyzer: RouteAnalyzer tying the three together
"""
