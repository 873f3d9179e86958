"""Structural change detection between item images."""

from dynamo_cdc.change_detection.differ import diff_images

__all__ = ["diff_images"]
