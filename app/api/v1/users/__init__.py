"""Users API"""
