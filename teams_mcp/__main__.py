from teams_mcp.server import main

main()
