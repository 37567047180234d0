"""
InpaintPro Configuration Package
"""
