"""Service catalogue API"""
