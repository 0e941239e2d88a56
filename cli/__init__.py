# cli - Click 기반 cfn 명령줄 인터페이스
