"""
웹 서버 실행 스크립트
백엔드 API 서버를 시작합니다.
"""

import argparse
import os

import uvicorn


def main():
    parser = argparse.ArgumentParser(description='Round Robin 시뮬레이터 API 서버')
    parser.add_argument('--host', default='0.0.0.0')
    parser.add_argument('--port', type=int, default=8000)
    parser.add_argument('--reload', action='store_true', help='코드 변경 시 자동 재시작')
    args = parser.parse_args()

    # 백엔드 디렉토리를 기준으로 app 모듈 로드 (app_dir)
    backend_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'backend')

    print("=" * 60)
    print("  Round Robin 스케줄러 시뮬레이터 - 웹 서버")
    print("=" * 60)
    print(f"API 문서: http://localhost:{args.port}/docs")
    print("종료하려면 Ctrl+C를 누르세요.")
    print("-" * 60)

    uvicorn.run('app:app', host=args.host, port=args.port, reload=args.reload,
                app_dir=backend_dir)


if __name__ == "__main__":
    main()
