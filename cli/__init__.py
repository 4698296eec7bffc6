"""cli - EMR Spot 비용 계산 명령줄 인터페이스"""
