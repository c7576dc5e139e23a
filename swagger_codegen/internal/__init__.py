"""Внутренние компоненты генератора"""
