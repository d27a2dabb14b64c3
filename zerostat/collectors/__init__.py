"""Host metric collectors"""
