"""Notifications API"""
