from calibsim.main import main

main()
