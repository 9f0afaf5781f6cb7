from koa_cli.cli import main

raise SystemExit(main())
