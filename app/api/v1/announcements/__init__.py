"""Announcements API"""
