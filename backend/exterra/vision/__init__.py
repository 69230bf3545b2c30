"""Image handling and OpenCV analysis for photos and map tiles."""
