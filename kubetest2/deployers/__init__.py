"""Namespace for cluster deployers; none are included in this package."""