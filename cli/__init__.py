"""
cli - topology 명령줄 인터페이스
"""
