"""Chat API"""
