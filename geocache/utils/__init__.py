"""유틸리티 모음: 메타데이터 병합, 로깅 설정, 프로세스 수명 주기"""
