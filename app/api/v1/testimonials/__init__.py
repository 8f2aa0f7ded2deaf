"""Testimonials API"""
