"""core/shared/aws - AWS 서비스별 공유 모듈 (EMR 메타데이터, Spot 가격)"""
